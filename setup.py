from setuptools import find_packages, setup


def read_requirements():
    with open("requirements.txt") as f:
        return [line for line in f.read().splitlines() if line and not line.startswith("#")]


setup(
    name="waylaunch",
    version="0.1.0",
    author="waylaunch contributors",
    description="A keyboard-driven application launcher for Wayland that learns from launch history",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "desktop": [
            "PyGObject",
        ],
        "dev": [
            "pytest",
            "pygobject-stubs",
        ],
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "waylaunch=waylaunch.main:main",
        ],
    },
    packages=find_packages(include=["waylaunch", "waylaunch.*"]),
    include_package_data=True,
)
