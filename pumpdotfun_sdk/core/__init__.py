"""Bonding curve math, address derivation, instruction assembly and orchestration"""
