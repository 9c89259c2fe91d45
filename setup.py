from setuptools import find_namespace_packages, setup


def read_requirements():
    with open("requirements.txt") as f:
        return [line for line in f.read().splitlines() if line and not line.startswith("#")]


setup(
    name="taskpanel",
    version="0.1.0",
    description="A Wayfire panel with a window taskbar at the bottom of the screen",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.11",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pygobject-stubs[Gtk4,Gdk]",
        ],
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": ["taskpanel = taskpanel.main:main"],
    },
    packages=find_namespace_packages(include=["taskpanel*"]),
    include_package_data=True,
)
