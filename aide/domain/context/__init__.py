# This module handles long-term memory for the agent pipeline

# +---------------------+
# |    MemoryStore      |   (Persistent, per subject)
# |---------------------|
# | Lessons             |
# | Preferences         |
# | Solutions / Errors  |
# | Embeddings          |
# +---------------------+
#
#    \    /   retrieve(query_text, limit=5)
#     \  /
#      \/
# +------------------------------+
# |        MemoryContext         |   (Assembled per task)
# |------------------------------|
# | Relevant memories for the    |
# |   task description           |
# | Outcome learned after a run  |
# +------------------------------+
#         |
#         v
#   [Planner prompt]
