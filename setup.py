"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/objcplan/objcplan"
KEYWORDS = "objective-c objc clang xcode build planner action-graph static-library module-map"
HERE = os.path.dirname(os.path.abspath(__file__))


def read_version() -> str:
    with open(os.path.join(HERE, "src", "objcplan", "__init__.py"), encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=", 1)[1].strip().strip("\"'")
    raise RuntimeError("__version__ not found")


if __name__ == "__main__":
    setup(
        name="objcplan",
        version=read_version(),
        description="Build action planner for Objective-C library targets",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=["psutil>=5.9"],
        extras_require={"test": ["pytest>=7"]},
        entry_points={"console_scripts": ["objcplan=objcplan.cli:main"]},
        include_package_data=True)
