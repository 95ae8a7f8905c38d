"""Zone assignment services"""
