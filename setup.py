import os

from setuptools import setup, find_packages

version_file = os.path.join(os.path.dirname(__file__), "sprig", "version.py",)
with open(version_file, "r") as f:
    exec(f.read())

setup(
    name="sprig",
    version=__version__,  # noqa: F821
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    author="Sprig contributors",
    description="Describe and validate tree-sitter style grammars in Python.",
    license="MIT",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
    ],
    keywords="grammar parser-generator tree-sitter DSL",
    python_requires=">=3.8",
    extras_require={"test": ["pytest"], "docs": ["sphinx", "numpydoc"]},
    entry_points={"console_scripts": []},
)
