"""HTTP layer for the EcoLimpio backend"""
