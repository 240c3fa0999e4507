"""Package setup for fritzbox_aha."""

from setuptools import setup, find_packages

setup(
    name="fritzbox-aha",
    version="1.0.0",
    description="Client for the AHA HTTP interface of AVM FRITZ!Box gateways",
    packages=find_packages(include=["fritzbox_aha", "fritzbox_aha.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "lxml>=5.0.0",
        "urllib3>=2.0.0",
        "colorlog>=6.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fritzbox-aha=fritzbox_aha.cli:main",
        ],
    },
)
