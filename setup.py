from setuptools import setup, find_packages

setup(
    name="px-deps",
    version="0.8.0",
    description="Project eXplorer - dependency queries over a bnd workspace and its eclipse workspace.",
    license="EPL-2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "rich>=13.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "px=px.modules.cli:main",
        ],
    },
)
