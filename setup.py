from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="taste-elo",
    version="0.1.0",
    author="",
    author_email="",
    description="Pairwise Elo ranking, custom tiers and taste analytics for tier lists",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "dspy",
        "numpy",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
)
