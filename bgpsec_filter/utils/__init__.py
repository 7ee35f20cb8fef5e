"""BGPsec Filter utilities: AS numbers, configuration, logging and errors"""
