"""Resample QuickDraw sketches to fixed-length vectors and cluster them with K-means."""
