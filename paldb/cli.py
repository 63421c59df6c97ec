import sys
from universal.options import exec_main, option_parser, fetch_option_parser
from paldb.client import PalDBClient
from paldb.pal import parse_pal, output_pal
from paldb.item import parse_item, output_item
from paldb.deck import parse_deck, output_deck

PARSERS = {
    "pal": parse_pal,
    "item": parse_item,
    "list": parse_deck,
}


def _object_type(parser, args):
    if not args or args[0] not in PARSERS:
        sys.stderr.write("object type must be one of: %s\n" % ", ".join(sorted(PARSERS)))
        parser.print_usage(sys.stderr)
        sys.exit(1)
    return args[0], args[1:]


def parse_main(argv=None):
    usage = "usage: %prog [options] <pal|item|list> <file> [file ...]"
    parser = option_parser(usage)
    options, args = parser.parse_args(argv)
    game_obj, files = _object_type(parser, args)
    exec_main(options, files, PARSERS[game_obj])


def fetchers(client):
    def fetch_pal(slug, options):
        if not options.stdout:
            sys.stderr.write("%s\n" % slug)
        return output_pal(client.fetch_pal_detail(slug), options.slug or slug, options)

    def fetch_item(slug, options):
        if not options.stdout:
            sys.stderr.write("%s\n" % slug)
        return output_item(client.fetch_item_detail(slug), options.slug or slug, options)

    def fetch_list(_name, options):
        if not options.stdout:
            sys.stderr.write("pal list\n")
        return output_deck(client.fetch_pal_list(), options)

    return {"pal": fetch_pal, "item": fetch_item, "list": fetch_list}


def fetch_main(argv=None, client=None):
    usage = "usage: %prog [options] <pal|item|list> [slug ...]"
    parser = fetch_option_parser(usage)
    options, args = parser.parse_args(argv)
    game_obj, slugs = _object_type(parser, args)
    if game_obj == "list":
        slugs = ["pals"]
    elif not slugs:
        sys.stderr.write("at least one slug is required\n")
        sys.exit(1)
    client = client or PalDBClient(retries=options.retries, debug=options.debug)
    exec_main(options, slugs, fetchers(client)[game_obj])
