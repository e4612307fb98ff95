"""Ideas domain - pro portfolios and the moderated photo gallery"""
