from setuptools import setup
import os.path
import re

VERSION_RE = re.compile(r"""__version__ = ['"]([-a-z0-9.]+)['"]""")
BASE_PATH = os.path.dirname(__file__)


with open(os.path.join(BASE_PATH, "respool", "__init__.py")) as f:
    match = VERSION_RE.search(f.read())
    if match is None:
        raise RuntimeError("Unable to determine version.")
    version = match.group(1)


with open(os.path.join(BASE_PATH, "README.md")) as readme:
    long_description = readme.read()


setup(
    name="respool",
    description="A self-healing asyncio pool of reusable, health-checked resources",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    version=version,
    packages=["respool"],
    python_requires=">=3.8",
    install_requires=["async_timeout>=3.0"],
    extras_require={
        "test": ["pytest", "coverage", "pytest-cov", "pytest-asyncio"],
    },
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Framework :: AsyncIO",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
    ],
)
