import os
from setuptools import setup

if os.name != "nt":
    # For compatibility with the py suffix
    scripts = ["ubigen.py"]
    entry_points = {
        "console_scripts": [
            "ubigen=ubigen.__init__:_main",
        ],
    }
else:
    scripts = []
    entry_points = {
        "console_scripts": [
            "ubigen=ubigen.__init__:_main",
            # For compatibility with scripts calling the .exe with a suffix
            "ubigen.py=ubigen.__init__:_main",
        ],
    }

setup(
    name="ubigen",
    version="1.4.0",
    description="A tool for adding UBI headers to a binary image",
    license="GPL-2.0-or-later",
    python_requires=">=3.10",
    packages=["ubigen"],
    install_requires=[
        "click",
        "rich_click",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    scripts=scripts,
    entry_points=entry_points,
)
