# run.py
import uvicorn
import logging
logging.basicConfig(level=logging.INFO)
logging.getLogger("automaton").setLevel(logging.DEBUG)
logging.getLogger("effects").setLevel(logging.DEBUG)

uvicorn.run("golem.main:app", host="0.0.0.0", port=8080, reload=False)
