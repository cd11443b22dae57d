from setuptools import setup, find_packages
from pathlib import Path

this_dir = Path(__file__).parent

readme = (this_dir / "README.md").read_text(encoding="utf-8")

setup(
    name="mpul",
    version="0.1.0",
    description="Multi-class Positive-Unlabelled learning by one-vs-rest decomposition",
    long_description=readme,
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "torch>=2.0",
        "numpy",
        "pandas",
        "scikit-learn",
        "matplotlib",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
