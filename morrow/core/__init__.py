"""
Core module for Morrow.
Configuration, logging, intent resolution, dispatch and response assembly.
"""
