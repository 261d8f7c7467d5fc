from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line for line in fh.read().splitlines() if line and not line.startswith("#")]

setup(
    name="graph-agents",
    version="0.1.0",
    description="Step-graph chat agents: a rock-paper-scissors opponent and a workcation planner",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "anyio>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "graph-agents=graph_agents.__main__:main",
        ],
    },
)
