"""Install the session handler package."""

from setuptools import setup, find_packages

setup(
    name='session-handler',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    install_requires=[
        "flask",
        "redis>=4.1",
        "msgpack",
        "pytz",
        "python-json-logger",
    ],
    extras_require={
        "test": [
            "pytest",
            "hypothesis",
        ],
    },
    zip_safe=False
)
