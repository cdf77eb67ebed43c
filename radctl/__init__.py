"""radctl - manage RADIUS profiles through a generic REST API"""
