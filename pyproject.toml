[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kconftools"
version = "0.1.0"
description = "Kconfig expression handling, .config line formats, make dependency fixing and documentation template processing"
requires-python = ">=3.10"
dependencies = []
keywords = ["kconfig", "kbuild", "configuration", "dependencies", "make", "build"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kconftools-fixdep = "kconftools.fixdep:main"
kconftools-docproc = "kconftools.docproc:main"

[tool.hatch.build.targets.wheel]
packages = ["kconftools"]

[tool.pytest.ini_options]
addopts = "-ra"
