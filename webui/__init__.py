"""BGPsec Filter management API"""
