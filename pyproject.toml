[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "docextract"
version = "0.1.0"
description = "Join positioned glyphs into lines, paragraphs and tables, and write them out as text, JSON or CSV"
requires-python = ">=3.10"
dependencies = []
keywords = ["text extraction", "layout analysis", "tables", "paragraphs", "json", "csv"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["docextract"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
