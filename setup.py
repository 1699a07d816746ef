from setuptools import setup

setup(
    name='pySiteTools',
    version='0.1.0',
    author="J M Franck",
    packages=['pysitetools',],
    python_requires='>=3.8',
    install_requires=['PyYAML', 'watchdog'],
    extras_require=dict(test=['pytest']),
    long_description=open('README.rst').read(),
    entry_points=dict(
        console_scripts=["pysitet = pysitetools.command_line:main",])
)
