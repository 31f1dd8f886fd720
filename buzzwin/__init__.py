"""Buzzwin engagement service: karma, levels and ritual streaks"""
