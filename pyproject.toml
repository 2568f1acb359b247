[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "cpaw"
version = "0.1.0"
description = "Building blocks for a small self-hosted clipboard web application: SQLite storage, bcrypt passwords, a router and HTML views."
requires-python = ">=3.10"
dependencies = [
    "bcrypt",
]
keywords = ["clipboard", "pastebin", "web", "sqlite", "htmx", "wsgi", "router"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools.packages.find]
include = ["cpaw*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
