# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="sizetree",
    version="1.0.0",
    description="Build artifact size comparison and browsable size trees",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["sizetree*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'sizetree=sizetree.interface.cli.app:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
