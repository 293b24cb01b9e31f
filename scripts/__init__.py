"""
Maintenance scripts

    python -m scripts.seed_data    # demo users, team, rules and approval form
"""
