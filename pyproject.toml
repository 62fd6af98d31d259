[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mediapipeline"
version = "0.1.0"
description = "Plan media processing jobs as dependency graphs, probe media files with ffprobe and keep track of job state."
requires-python = ">=3.10"
dependencies = []
keywords = ["media", "video", "audio", "ffmpeg", "ffprobe", "dag", "pipeline", "job-planning"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mediapipeline"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
