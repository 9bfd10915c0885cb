from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith("#")]

setup(
    name="hypertension-coach",
    version ="0.1",
    packages = find_packages(exclude=["tests", "tests.*"]),
    install_requires = requirements,
    extras_require = {"test": ["pytest"]},
    python_requires = ">=3.9",
)
