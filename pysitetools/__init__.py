"""Task runner for building, previewing and decorating a static course site."""
