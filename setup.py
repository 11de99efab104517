"""
Youth Football Skills-Testing Scorer
Setup Configuration
"""

from pathlib import Path

from setuptools import setup, find_packages

HERE = Path(__file__).parent

README = (HERE / "README.md").read_text(encoding="utf-8")
REQUIREMENTS = [
    line.strip()
    for line in (HERE / "requirements.txt").read_text(encoding="utf-8").splitlines()
    if line.strip() and not line.startswith("#")
]

setup(
    name="skills-testing-scorer",
    version="1.0.0",
    description="Station scoring, age-bucket score tables and leaderboards for youth football skills tests",
    long_description=README,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["services", "services.*", "utils", "utils.*"]),
    py_modules=["cli"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
    python_requires=">=3.10",
    install_requires=REQUIREMENTS,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-mock>=3.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "skills-scoring=cli:cli",
        ],
    },
)
