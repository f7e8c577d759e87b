"""
subnetdash Backend Components

- Subsets: Pareto subset winners analysis and its views
- Summary: Summary table source (endpoints, payload transform, polling cache)
"""
