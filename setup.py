from setuptools import setup, find_packages

setup(
    name="repeat2me",
    version="0.1.0",
    description="Record, trim and loop spoken affirmations",
    author="",
    python_requires=">=3.8",
    packages=find_packages(include=["repeat2me", "repeat2me.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "soundfile>=0.12.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "aiohttp>=3.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "repeat2me=repeat2me.main:main",
        ],
    },
)
