"""
Pipeline modules for the read-retrieve-read chat approach.

Read:      query_planner.py  (search query from the latest question)
Retrieve:  retrieval.py      (documents, plus images when configured)
Read:      config_resolver.py, answer_generator.py, followups.py

Orchestrated by: orchestrator.py
"""
