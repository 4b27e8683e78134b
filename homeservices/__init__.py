"""Home services marketplace API"""
