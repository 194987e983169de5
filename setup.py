"""
Setup script for covidmath package.
"""

from setuptools import setup, find_packages

setup(
    name="covidmath",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "scipy>=1.7.0",
            "scikit-learn>=1.0.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'covidmath=covidmath.__main__:main',
        ],
    },
    description="Clustering, PCA and outlier detection over per-country COVID-19 indicators",
    keywords="covid, clustering, pca, outlier detection",
    python_requires=">=3.8",
)
