"""Zentra - booking platform API for beauty and wellness businesses"""
