"""Domain packages, one per feature area"""
