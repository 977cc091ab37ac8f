import os, glob, yaml


def get_config_dir():

    return os.path.join(os.path.dirname(__file__),'../config')


def list_config(full_path=False):

    fs = glob.glob(os.path.join(get_config_dir(), '*.yaml'))

    if full_path:
        return fs

    return [os.path.basename(f)[:-5] for f in fs]


def get_config(name):

    options = list_config()
    results = list_config(True)

    if name in options:
        return results[options.index(name)]

    if name.endswith('.yaml') and name[:-5] in options:
        return results[options.index(name[:-5])]

    print('No data found for config name:',name)
    raise FileNotFoundError(f'No configuration named {name} in {get_config_dir()}')


def load_config(name:str):

    with open(get_config(name),'r') as f:
        return yaml.safe_load(f)


def load_detector_config(name):
    '''
    Detector constants from a config name, or from the "Detector" entry of an
    already loaded configuration.
    '''
    if isinstance(name,dict):
        name = name['Detector']
    with open(get_config(name),'r') as f:
        return yaml.safe_load(f)
