"""Admin domain - moderation and platform statistics"""
