
from setuptools import setup, find_packages
setup(
    name="xamstore",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["numpy", "lz4", "xxhash"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["xamstore=xamstore.cli:main"]},
    python_requires=">=3.9",
)
