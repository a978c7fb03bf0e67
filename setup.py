# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="treelink",
    version="1.1.0",
    description="Tri-state folder selection trees with linked views and persistent sessions",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["treelink*"]),
    python_requires=">=3.9",
    install_requires=[],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'treelink=treelink.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
