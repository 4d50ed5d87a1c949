from setuptools import setup, find_packages

setup(
    name="scripture-scenes",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1.7",
        "pydantic>=2.5.3",
        "pyyaml>=6.0.1",
        "rich>=13.7.0",
        "loguru>=0.7.2",
        "google-genai>=1.20.0",
        "httpx>=0.27.0",
        "fastapi>=0.110.0",
        "uvicorn>=0.29.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "scripture-scenes=scripture_scenes.cli:main",
        ],
    },
    python_requires=">=3.10",
)
