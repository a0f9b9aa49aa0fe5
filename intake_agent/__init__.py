"""Financial application intake agent — a conversational application form.

Architecture Overview
=====================

An applicant chats with the agent; each message goes through one stateless
request handler:

1. **load** — the session record is read from the session store and an
   ``ApplicationAgent`` is rebuilt from it.
2. **extract** — field values are pulled out of the message, either with
   regular expressions, with a Claude extraction call, or both.  Every
   candidate is validated before it is stored and nothing is overwritten.
3. **reply** — Claude writes the next conversational turn from a freshly
   rendered system prompt plus the latest message only.
4. **advance** — if the current section is complete the agent moves on;
   when the family section is complete the application is done.
5. **save** — the agent is written back with a refreshed expiry.

Key Design Decisions
--------------------
- **One section table**: ``sections.SECTION_FIELDS`` drives prompts, the
  extraction schema, completion checks, percentages and the summary.
- **No process-wide agent**: state lives only in the session store.
- **Extraction never fails a request**: model or parse errors are logged and
  the conversation continues.
- **Optimistic saves**: a send only persists if the record's version is
  unchanged since it was loaded.

Package Structure
-----------------
- ``intake_agent/agent.py`` — ``ApplicationAgent`` state machine
- ``intake_agent/sections.py`` — section/field table
- ``intake_agent/validators.py`` — email, date of birth, name, phone
- ``intake_agent/extraction.py`` — pattern and model-assisted extraction
- ``intake_agent/prompts.py`` — system, extraction and welcome text
- ``intake_agent/handlers.py`` — request handlers
- ``intake_agent/server.py`` — FastAPI application
- ``intake_agent/main.py`` — CLI chat interface
- ``intake_agent/services/`` — LLM client, session store, metrics
- ``intake_agent/api/`` — FastAPI routes and Pydantic schemas
"""
