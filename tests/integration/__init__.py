"""
Integration Tests Package for parkslot

Integration tests focus on:
1. Concurrent check-in and check-out against shared lots
2. End-to-end flows through commands, events and the CLI
"""
