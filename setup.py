from setuptools import setup, find_packages

setup(
    name="gossip-grid",
    version="0.1.0",
    description="CRDT state sharing and A* navigation for turn-based grid agents",
    author="adamfilli",
    packages=find_packages(include=["gossipgrid", "gossipgrid.*"]),
    install_requires=[
        "matplotlib",
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
