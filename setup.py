from setuptools import setup, find_packages

setup(
    name="mediastream",
    version="0.1.0",
    description="Constraint-based capture device/codec selection with per-track encode pipelines, using PyAV",
    author="mediastream developers",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    include_package_data=True,
    install_requires=[
        "av>=12.3.0",
        "Pillow>=10.4.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "mediastream=mediastream.main:main",
        ],
    },
)
