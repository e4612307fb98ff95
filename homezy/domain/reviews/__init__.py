"""Reviews domain - homeowner ratings of hired pros"""
