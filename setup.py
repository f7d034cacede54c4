from setuptools import setup, find_packages

setup(
    name="ebs-snapshot-rotator",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "boto3>=1.26.0",
        "botocore>=1.29.0",
        "requests>=2.28.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ebs-rotate-backup=ebs_rotate.scripts.backup:main",
            "ebs-rotate-metadata=ebs_rotate.scripts.metadata:main",
        ],
    },
    python_requires=">=3.8",
)
