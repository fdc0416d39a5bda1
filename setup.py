#!/usr/bin/env python

from setuptools import setup

setup(
    name="xcsigninfo",
    version="0.1.0",
    packages=[
        "xcsigninfo",
        "xcsigninfo.artifacts",
        "xcsigninfo.details",
        "xcsigninfo.details.tools",
        "xcsigninfo.xcode",
    ],
    python_requires=">=3.9",
    install_requires=["pbxproj"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["xcsigninfo = xcsigninfo.__main__:main"]},
)
