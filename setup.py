from __future__ import annotations

from setuptools import find_packages, setup  # type: ignore


setup(
    name="smartzoom",
    version="0.1.0",
    description="Keyframe interpolation engine for smart zoom and tracking marker previews",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "numpy",
        "fastapi",
        "uvicorn",
        "httpx",
        "coloredlogs",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "smartzoom=smartzoom.__main__:main",
        ],
    },
)
