#!python

import os.path

from setuptools import find_packages, setup

# Read the version without importing the package and its dependencies
_version = {}
with open(os.path.join("src", "renfa", "version.py")) as f:
    exec(f.read(), _version)
versionstring = _version["versionstring"]

if __name__ == "__main__":
    setup(
        name="renfa",
        version=versionstring(),
        package_dir={"": "src"},
        packages=find_packages("src"),
        author="Matt Chaput",
        author_email="matt@whoosh.ca",
        description="Pure-Python compiler from regular expression trees to epsilon-NFAs.",
        long_description=open("README.md").read(),
        long_description_content_type="text/markdown",
        license="Two-clause BSD license",
        keywords="regex automata nfa epsilon closure",
        zip_safe=True,
        python_requires=">=3.8",
        install_requires=[
            "cached-property==1.5.2",
            "loguru==0.7.2",
        ],
        extras_require={
            "test": [
                "pytest==8.3.2",
            ],
        },
        classifiers=[
            "Programming Language :: Python :: 3",
            "Development Status :: 4 - Beta",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: BSD License",
            "Natural Language :: English",
            "Operating System :: OS Independent",
            "Programming Language :: Python :: 3.8",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.12",
            "Topic :: Software Development :: Libraries :: Python Modules",
            "Topic :: Text Processing",
        ],
    )
