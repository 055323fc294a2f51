"""Orchestrators that sequence the compile activities.

- compile_mission: select -> unpack -> rewrite -> repack -> promote
"""
