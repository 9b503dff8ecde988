from setuptools import setup, find_packages

setup(
    name="edlkit",
    version="0.1.0",
    packages=find_packages(include=["edlkit", "edlkit.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        # Post-edit syntax validation
        "tree-sitter>=0.22",
        "tree-sitter-python",
        "tree-sitter-javascript",
        "tree-sitter-typescript",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "edlkit=edlkit.cli:main",
        ],
    },
    description="An interpreter for the Edit Description Language: scripted, "
                "selection-based file edits with per-file results.",
)
