"""
Service layer: contribution tracking, study sessions and the AI client.
"""
