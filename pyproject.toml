[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "iisadmin"
version = "0.1.0"
description = "Manage IIS websites by driving PowerShell's WebAdministration module"
requires-python = ">=3.10"
dependencies = []
keywords = ["iis", "powershell", "webadministration", "windows", "website"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["iisadmin"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
