"""Family health records and wellness tracking.

Service layer over a remote table store: family profiles, medical records,
women's health, pregnancy, baby care, vitals and gamification.
"""
