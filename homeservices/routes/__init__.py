"""HTTP routers outside the domain packages"""
