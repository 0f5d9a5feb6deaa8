"""Contract core, world state and storage"""
