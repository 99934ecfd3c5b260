from setuptools import setup, find_packages

setup(
    name="ndview",
    version="0.1",
    description="Strided, view-based N-dimensional arrays over shared storage",
    package_dir={"": "python"},
    packages=find_packages(where="python"),
    python_requires=">=3.8",
    install_requires=["numpy"],
    extras_require={"test": ["pytest"]},
)


# $ pip install -e .[test]
# $ python -m pytest tests
