[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clinban"
version = "0.1.0"
description = "File-based kanban tickets: Markdown files with YAML frontmatter, a workflow state machine, schema lint and an archive."
requires-python = ">=3.11"
dependencies = [
    "pyyaml",
]
keywords = ["kanban", "tickets", "markdown", "frontmatter", "issue-tracker"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Bug Tracking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["clinban"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
