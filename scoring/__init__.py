"""
Scoring package: window metrics, heatmap, trends, quality proxies and archetype classification.
"""
