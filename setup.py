#!/usr/bin/env python3


import dupestash

from setuptools import setup
import os


with open(os.path.join(
        os.path.dirname(os.path.abspath(__file__)),
        "readme.rst"
    ), "r") as readme_stream:
    readme_text = readme_stream.read()


setup(
    name             = "dupestash",
    version          = dupestash.__version__,
    description      = dupestash.__doc__.strip(),
    long_description = readme_text,
    license          = "MIT",

    packages=[
        "dupestash",
        "dupestash.cli",
        "dupestash.fs",
    ],
    python_requires=">=3.6",
    extras_require={
        "test": [
            "pytest",
        ],
    },
    classifiers=[
        'Environment :: Console',
        'Intended Audience :: End Users/Desktop',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Operating System :: POSIX :: Linux',
        'Operating System :: MacOS :: MacOS X',
        'Topic :: Multimedia :: Sound/Audio',
        'Topic :: Utilities'
    ],
    entry_points={
        "console_scripts": [
            "dupestash = dupestash.cli.dupestash:main",
            "dupestats = dupestash.cli.dupestats:main"
        ]
    },
    test_suite="tests"
)
