"""
Veo Job Client Services

- video_generation: submit / poll / download client for Veo jobs
- streaming: progress channel and generation state tracking
"""
