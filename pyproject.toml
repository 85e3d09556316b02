[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ohboi"
version = "0.1.0"
description = "Game Boy and Game Boy Color emulator components: timer, PPU, DMA, work RAM and cartridge mappers"
requires-python = ">=3.10"
dependencies = []
keywords = ["game boy", "gameboy", "gbc", "emulator", "ppu", "mbc", "cartridge"]
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
    "Topic :: System :: Emulators",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ohboi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
