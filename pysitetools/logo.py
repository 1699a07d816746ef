"""Turn a LaTeX logo source into PDF and (best effort) SVG assets.

The PDF comes from ``pdflatex``.  For the SVG a DVI is compiled with
``latex`` and handed to ``dvisvgm``; if that fails the PDF is converted
with whichever of ``pdf2svg`` or ``inkscape`` is installed.  Compiler
leftovers are removed from the assets directory afterwards.
"""

import logging
import shutil
import subprocess
from pathlib import Path

from .command_registry import register_command
from .config import ConfigError, load_config

INTERMEDIATE_SUFFIXES = [".aux", ".log", ".dvi", ".out"]


class LogoBuildError(Exception):
    """Raised when the PDF stage of a logo build fails."""


class LogoJob:
    def __init__(self, source, label="Logo", assets_dir="assets", root="."):
        self.source = str(source)
        self.label = label
        self.assets_dir = Path(assets_dir)
        self.root = Path(root)
        self.stem = Path(self.source).stem

    def artifact(self, suffix):
        """Path of an output file, relative to the project root."""
        return self.assets_dir / (self.stem + suffix)

    @property
    def pdf(self):
        return self.artifact(".pdf")

    @property
    def dvi(self):
        return self.artifact(".dvi")

    @property
    def svg(self):
        return self.artifact(".svg")

    def exists(self, path):
        return (self.root / path).exists()


class SvgConverter:
    """One way of producing the SVG.

    ``consumes`` names the artifact the tool reads (``"dvi"`` or
    ``"pdf"``).  When ``needs_lookup`` is set the tool is skipped unless
    it is found on PATH.
    """

    def __init__(self, name, consumes, build_args, needs_lookup=True):
        self.name = name
        self.consumes = consumes
        self.build_args = build_args
        self.needs_lookup = needs_lookup

    def available(self):
        return not self.needs_lookup or shutil.which(self.name) is not None

    def convert(self, job):
        source = job.dvi if self.consumes == "dvi" else job.pdf
        args = self.build_args(str(source), str(job.svg))
        logging.debug("running: %s", " ".join(args))
        try:
            result = subprocess.run(
                args, cwd=job.root, stderr=subprocess.DEVNULL
            )
        except OSError as exc:
            logging.debug("%s could not be started: %s", self.name, exc)
            return False
        return result.returncode == 0


PRIMARY_CONVERTER = SvgConverter(
    "dvisvgm",
    "dvi",
    lambda src, out: ["dvisvgm", "--no-fonts", "--output=" + out, src],
    needs_lookup=False,
)
FALLBACK_CONVERTERS = [
    SvgConverter("pdf2svg", "pdf", lambda src, out: ["pdf2svg", src, out]),
    SvgConverter(
        "inkscape",
        "pdf",
        lambda src, out: [
            "inkscape",
            src,
            "--export-type=svg",
            "--export-filename=" + out,
        ],
    ),
]


class LogoResult:
    def __init__(self, job, svg=None, converter=None):
        self.job = job
        self.pdf = job.pdf
        self.svg = svg
        self.converter = converter

    def __repr__(self):
        return "LogoResult(pdf=%r, svg=%r, converter=%r)" % (
            str(self.pdf),
            None if self.svg is None else str(self.svg),
            self.converter,
        )


def _latex(compiler, job, quiet=False):
    args = [
        compiler,
        "-interaction=nonstopmode",
        "-output-directory=" + str(job.assets_dir),
        job.source,
    ]
    logging.debug("running: %s", " ".join(args))
    output = subprocess.DEVNULL if quiet else None
    try:
        result = subprocess.run(
            args, cwd=job.root, stdout=output, stderr=output
        )
    except OSError as exc:
        if quiet:
            logging.debug("%s could not be started: %s", compiler, exc)
            return None
        raise LogoBuildError(f"{compiler} could not be started: {exc}")
    return result.returncode


def convert_to_svg(job, primary=None, fallbacks=None):
    """Try the converters in order; return the name of the one that worked.

    Returns None (after printing a warning) when nothing produced an SVG.
    """
    primary = PRIMARY_CONVERTER if primary is None else primary
    fallbacks = FALLBACK_CONVERTERS if fallbacks is None else fallbacks
    if primary.available() and primary.convert(job):
        print("SVG created successfully")
        return primary.name
    print("Warning: SVG conversion failed. Trying alternative methods...")
    for converter in fallbacks:
        if not converter.available():
            continue
        if converter.convert(job):
            print(f"SVG created via {converter.name}")
            return converter.name
        logging.debug("%s did not produce an SVG", converter.name)
    print(f"Warning: Could not convert to SVG. PDF available at {job.pdf}")
    return None


def remove_intermediates(job):
    for suffix in INTERMEDIATE_SUFFIXES:
        path = job.root / job.artifact(suffix)
        if path.exists():
            path.unlink()


def build_logo(job, primary=None, fallbacks=None):
    """Run the whole pipeline for one logo and return a LogoResult."""
    (job.root / job.assets_dir).mkdir(parents=True, exist_ok=True)
    converter = None
    try:
        print(f"Building {_lower_first(job.label)} as PDF...")
        returncode = _latex("pdflatex", job)
        if returncode != 0:
            raise LogoBuildError(
                f"pdflatex failed on {job.source} (exit status {returncode})"
            )
        print(f"Building {_lower_first(job.label)} as SVG...")
        # dvisvgm reads DVI, so compile a second time in DVI mode
        _latex("latex", job, quiet=True)
        if job.exists(job.dvi):
            converter = convert_to_svg(job, primary, fallbacks)
        else:
            print(
                "Warning: DVI file not created. PDF available at"
                f" {job.pdf}"
            )
    finally:
        remove_intermediates(job)
    if job.exists(job.svg):
        print(f"{job.label} built: {job.pdf} and {job.svg}")
        return LogoResult(job, job.svg, converter)
    print(f"{job.label} built: {job.pdf} (SVG conversion skipped)")
    return LogoResult(job)


def _lower_first(label):
    # "IDEEP logo" stays as is, "Logo" becomes "logo"
    if label[:1].isupper() and not label[1:2].isupper():
        return label[:1].lower() + label[1:]
    return label


def configured_job(name, cfg=None):
    cfg = load_config() if cfg is None else cfg
    if name not in cfg["logos"]:
        raise ConfigError(f"No logo named '{name}' is configured")
    entry = cfg["logos"][name]
    return LogoJob(
        entry["source"],
        label=entry["label"],
        assets_dir=cfg["assets_dir"],
        root=cfg["root"],
    )


@register_command("Build the site logo (wake_biology_logo.tex) as PDF and SVG")
def logo():
    build_logo(configured_job("logo"))
    return 0


@register_command("Build the IDEEP logo (ideep_logo.tex) as PDF and SVG")
def ideep_logo():
    build_logo(configured_job("ideep-logo"))
    return 0


@register_command(
    "Build PDF and SVG assets from any LaTeX logo source",
    help={
        "source": "LaTeX file to compile",
        "label": "Name used in the progress messages",
    },
)
def tex_logo(source, label="Logo"):
    cfg = load_config()
    build_logo(
        LogoJob(
            source, label=label, assets_dir=cfg["assets_dir"], root=cfg["root"]
        )
    )
    return 0
