"""Ledger RPC, pump.fun instruction encoding and metadata upload clients"""
