"""Resources domain - help-center articles"""
