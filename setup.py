"""Packaging for lspnav."""

from pathlib import Path

from setuptools import setup, find_packages

HERE = Path(__file__).parent
TEST_TOOLS = ("pytest",)


def _lines(name):
    text = (HERE / name).read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip() and not line.startswith("#")]


requirements = _lines("requirements.txt")
test_requirements = [req for req in requirements if req.startswith(TEST_TOOLS)]
runtime_requirements = [req for req in requirements if req not in test_requirements]

setup(
    name="lspnav",
    version=(HERE / "VERSION").read_text(encoding="utf-8").strip(),
    author="lspnav Team",
    description="Semantic hover lookup and import-aware file moves on top of language servers",
    long_description=(HERE / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=runtime_requirements,
    extras_require={"test": test_requirements, "dev": test_requirements},
    entry_points={"console_scripts": ["lspnav=src.apps.cli:main"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
    ],
    python_requires=">=3.9",
)
