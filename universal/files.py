import os
import json

def char_replace(instr):
	for char in ['(', ')', '[', ']', ',', '/', "'", ":", ";", "&", ".", "#", "\u2019", "?"]:
		instr = instr.replace(char, '')
	instr = instr.strip()
	instr = instr.replace(' ', '_')
	return instr.lower()

def makedirs(output, game_obj):
	game_obj_dir = os.path.abspath(output + "/" + char_replace(game_obj))
	if not os.path.exists(game_obj_dir):
		os.makedirs(game_obj_dir)
	return game_obj_dir

def write_json(jsondir, name, struct):
	filename = os.path.abspath(jsondir + "/" + char_replace(name) + ".json")
	with open(filename, 'w') as fp:
		json.dump(struct, fp, indent=4)
	return filename

def output_struct(struct, options, game_obj, name):
	if not options.dryrun:
		jsondir = makedirs(options.output, game_obj)
		filename = write_json(jsondir, name, struct)
		if not options.stdout:
			print("%s: %s" % (game_obj, filename))
	if options.stdout:
		print(json.dumps(struct, indent=2, ensure_ascii=False))
