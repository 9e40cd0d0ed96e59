LIST = {
    "get_snippet": {
        "name": "get_snippet",
        "description": "Retrieve a snippet by name.",
        "input_schema": {
            "type": "object",
            "required": ["snippetname"],
            "properties": {
                "snippetname": {"type": "string", "description": "The name of the snippet."},
            },
        },
    },
    "save_snippet": {
        "name": "save_snippet",
        "description": "Save a snippet with a name.",
        "input_schema": {
            "type": "object",
            "required": ["snippetname", "snippet"],
            "properties": {
                "snippetname": {"type": "string", "description": "The name of the snippet."},
                "snippet": {"type": "string", "description": "The content of the snippet."},
            },
        },
    },
}
