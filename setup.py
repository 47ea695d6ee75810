import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="resolvent",
    version="0.1.0",
    author="Robert Myers",
    author_email="robert@julython.org",
    description="Async GraphQL execution engine",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/rmyers/resolvent",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "graphql-core>=3.2",
        "python-dotenv",
        "tomli",
    ],
    extras_require={
        "asgi": [
            "fastapi",
            "pydantic",
        ],
        "test": [
            "fastapi",
            "httpx",
            "pydantic",
            "pytest",
            "pytest-asyncio",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "resolvent=resolvent.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
