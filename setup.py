from setuptools import setup, find_packages

setup(
    name="celltrack",
    version="0.1.0",
    author="Sanic Community",
    author_email="tronic@noreply.users.github.com",
    description="Track executed code cells through edits of their source documents",
    long_description=open("README.md", encoding="UTF-8").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    classifiers = [
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "License :: Public Domain",
        "Operating System :: OS Independent",
    ],
    extras_require = {"test": ["pytest", "coverage"]},
    include_package_data = True,
)
