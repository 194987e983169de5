"""
Numerical routines: scaling, PCA, k-means and outlier detection.
"""
