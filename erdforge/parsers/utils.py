import re

# $$ or $tag$ opening a dollar-quoted string
DOLLAR_QUOTE = re.compile(r'\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$')


def strip_comments(sql: str) -> str:
    """
    Removes line comments (-- to end of line) and block comments (/* ... */).

    Comment markers inside quoted text ('...', "...", `...`, $$...$$) are
    left alone.
    The newline ending a line comment is kept and a block comment becomes a
    single space, so tokens on either side never merge.

    Args:
        sql (str): The raw SQL string.

    Returns:
        str: The SQL string without comments.
    """
    result = []
    i = 0
    n = len(sql)
    nesting = 0
    in_quote = False
    quote_char = None
    in_line_comment = False
    dollar_tag = None

    while i < n:
        char = sql[i]
        next_char = sql[i+1] if i + 1 < n else ''

        if in_line_comment:
            if char == '\n':
                in_line_comment = False
                result.append(char)
            i += 1
            continue

        if nesting > 0:
            if char == '/' and next_char == '*':
                nesting += 1
                i += 2
                continue
            if char == '*' and next_char == '/':
                nesting -= 1
                if nesting == 0:
                    result.append(' ')
                i += 2
                continue
            i += 1
            continue

        if in_quote:
            result.append(char)
            if char == '\\' and quote_char == "'" and next_char:
                result.append(next_char)
                i += 2
                continue
            if char == quote_char:
                # Doubled quote is an escaped quote, not the end
                if next_char == quote_char:
                    result.append(next_char)
                    i += 2
                    continue
                in_quote = False
            i += 1
            continue

        if dollar_tag:
            if sql.startswith(dollar_tag, i):
                result.append(dollar_tag)
                i += len(dollar_tag)
                dollar_tag = None
                continue
            result.append(char)
            i += 1
            continue

        # Check for start of quoted text
        if char in ("'", '"', '`'):
            in_quote = True
            quote_char = char
            result.append(char)
            i += 1
            continue

        # Check for $$ or $tag$
        if char == '$':
            match = DOLLAR_QUOTE.match(sql, i)
            if match:
                dollar_tag = match.group(0)
                result.append(dollar_tag)
                i = match.end()
                continue

        # Check for line comment
        if char == '-' and next_char == '-':
            in_line_comment = True
            i += 2
            continue

        # Check for block comment start
        if char == '/' and next_char == '*':
            nesting += 1
            i += 2
            continue

        result.append(char)
        i += 1

    return "".join(result)


def clean_name(name: str) -> str:
    """Strips identifier delimiters (`name`, "name", [name]) and unescapes doubled quotes."""
    # Zero width spaces sneak in from copy/pasted DDL
    name = name.replace(chr(0x200b), '').strip()

    if len(name) >= 2:
        first, last = name[0], name[-1]
        if first == '"' and last == '"':
            return name[1:-1].replace('""', '"')
        if first == '`' and last == '`':
            return name[1:-1].replace('``', '`')
        if first == '[' and last == ']':
            return name[1:-1]

    return name
